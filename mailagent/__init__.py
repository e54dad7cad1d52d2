"""MailAgent.

Turns free-text operator directives into Mailchimp operations: a deterministic
interpreter plans the actions and an executor runs them, keeping an auditable
trace of both steps.
"""

__version__ = "0.1.0"
