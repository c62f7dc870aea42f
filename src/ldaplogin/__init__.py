"""LDAP login and identity mapping."""
