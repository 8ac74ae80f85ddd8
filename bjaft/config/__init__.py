"""
Configuration module for the Buckley-James AFT project.
"""
