"""
Utility modules for the Multinet client
"""
