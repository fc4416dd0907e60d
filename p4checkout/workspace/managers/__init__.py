"""Data access managers for the workspace controller.

Managers wrap p4 commands behind async methods and raise domain exceptions
(``RuntimeError``, ``ValueError`` subclasses), never click exceptions --
that translation is the CLI's responsibility.
"""
