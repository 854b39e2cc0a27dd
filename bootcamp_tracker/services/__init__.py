"""Services Layer — bootcamper orchestration, tracking jobs, webhook handling and the worker.

Invariants:
    - Services take an AsyncSession and already-built clients; they never read Settings
      except for the worker entry point

Design Decisions:
    - One module per concern (tracking jobs, play-rates, webhook, roster) for locality
"""
