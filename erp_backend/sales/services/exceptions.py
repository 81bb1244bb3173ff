# sales/services/exceptions.py

"""
SALES DOMAIN ERRORS
"""


class SalesWorkflowError(Exception):
    pass


class InvalidOrderTransitionError(SalesWorkflowError):
    pass
