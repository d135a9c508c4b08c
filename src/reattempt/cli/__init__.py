"""
Command line interface for inspecting policy files.
"""
