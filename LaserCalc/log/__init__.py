"""
Logging subsystem for LaserCalc.

Modules:

- :mod:`LaserCalc.log.log` – Log handlers integrating Python logging with the in-memory tank and Qt messages.
- :mod:`LaserCalc.log.model` – Qt table and proxy models over the stored log messages.
- :mod:`LaserCalc.log.view` – Log table view and dock widget.
"""
