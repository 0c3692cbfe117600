"""
Domain layer: shell streaming, file transfer and the session facade
"""
