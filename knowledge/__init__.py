"""
ccdagen knowledge base.

Contains the declarative conversion data:
- Code system name to OID map
- Section templates for the template-driven sections
"""
