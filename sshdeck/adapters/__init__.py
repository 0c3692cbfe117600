"""
Adapters: CLI, configuration loading and local byte sources/sinks
"""
