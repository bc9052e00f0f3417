"""
standards-sync - documentation integrity and adoption tooling for a markdown
standards repository.

Packages:
    core        Errors, hashing, logging, settings, config models
    markdown    Heading / link / index-table / marker-block parsing
    navigation  Navigation graph and completeness / link validator
    merge       Marker-block merge engine and adoption modes
    snapshot    Hashed, immutable snapshots of the standards tree
    simulator   End-to-end adoption scenarios in disposable sandboxes
    cli         Typer application (``standards-sync``)

Modules:
    adoption_check  Read-only health check of an adopted project
    pilot           Pilot scaffolding, readiness checks, findings summary
"""

__version__ = "0.3.0"
