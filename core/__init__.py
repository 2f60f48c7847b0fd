"""core/ -- Configuration and the shared error taxonomy.

Layer rule: core/ is the kernel and has no reverse dependencies.
"""
