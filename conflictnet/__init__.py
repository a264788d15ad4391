"""
conflictnet package
===================

Batch pipeline that turns an ACLED-style conflict event export into
summary tables and a weighted actor-interaction graph for Gephi.

- The CLI entry point is in `conflictnet/cli.py`.
- The pipeline engine (stage orchestration) is in `conflictnet/engine.py`.
- Dataset loading and schema projection are in `conflictnet/loader.py`.
"""

__version__ = '0.1.0'
