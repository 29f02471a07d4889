"""PasswordLock Meta information.
   PasswordLock keeps an encrypted password vault in sync with a remote
   service and tracks the user's authentication session.
"""
__title__ = 'passwordlock'
__description__ = (
   'PasswordLock keeps an encrypted password vault in sync with a remote '
   'service and tracks the user authentication session.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2025 PasswordLock Developers'
__author__ = 'PasswordLock Developers'
__author_email__ = 'dev@passwordlock.app'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/passwordlock/passwordlock'
