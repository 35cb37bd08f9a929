"""
Settings, constants and the error taxonomy.
"""
