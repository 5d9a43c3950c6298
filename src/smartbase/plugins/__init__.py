"""Plugin package initialiser.

Keep this file lightweight; concrete plugins (``logging``) self-register
when imported (see ``smartbase.__init__``), and ``pydantic`` is imported
explicitly by users of typed attributes.
"""

__all__: list[str] = []
