"""
Operator command-line tools.
"""
