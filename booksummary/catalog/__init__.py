"""
Catalogue package: the local collection, Project Gutenberg (through
Gutendex) and the synthetic modern feed behind one set of endpoints.

The router lives in ``catalog.router`` and is mounted by ``main``.
"""
