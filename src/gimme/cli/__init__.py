"""
gimme command line interface.
"""
