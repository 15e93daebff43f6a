"""Test suite for depot.

Test Structure:
- unit/: Unit tests for individual components
  - storage/: paths, errors, MIME detection, both backends, the manager
  - config/: config file loading
  - utils/: logging configuration
  - cli/: the depot command
- integration/: the storage contract run against every backend
"""
