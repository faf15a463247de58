"""
bridgeconf: config.json store, plugin block editor and backup retention for a bridge admin console.
"""
__version__ = "1.0.0"
