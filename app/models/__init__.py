#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------

"""ORM models package. Importing it registers every table with Base.metadata."""

from .login import Login, Session
from .person import Person
from .organisation import Organisation
from .initiative import Initiative, InitiativeOrganisation, Signature

__all__ = [
    "Login", "Session", "Person", "Organisation",
    "Initiative", "InitiativeOrganisation", "Signature",
]
