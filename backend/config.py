import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3000'))
    # Comma separated list, or '*' to accept any origin
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    SIGNALING_NAMESPACE = os.environ.get('SIGNALING_NAMESPACE', '/')
    PIN_LENGTH = int(os.environ.get('PIN_LENGTH', '6'))
    # Idle session timeout (seconds). 0 disables.
    SESSION_IDLE_TIMEOUT_SEC = int(os.environ.get('SESSION_IDLE_TIMEOUT_SEC', '0'))
    SESSION_REAP_INTERVAL_SEC = int(os.environ.get('SESSION_REAP_INTERVAL_SEC', '30'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
