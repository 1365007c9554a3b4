"""
Richtext component tests.

- Markup parsing and canonical serialization
- Mark, block and void edit operations
- Component entry points and error codes
- Editor session commands
"""
