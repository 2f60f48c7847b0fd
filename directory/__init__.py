"""directory/ -- User directory operations and their access rules.

Layer rule: directory/ imports from auth/ and core/ only. It does not import
FastAPI or anything under api/.
"""
