"""Env Secure Meta information.
   Env Secure encrypts .env files at rest with a rotatable secret key.
"""
__title__ = 'env_secure'
__description__ = (
   'Encrypt .env files at rest with a passphrase-wrapped, '
   'rotatable secret key.'
)
__version__ = '1.0.0'
__license__ = 'Apache-2.0'
