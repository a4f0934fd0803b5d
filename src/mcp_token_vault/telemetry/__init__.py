"""Telemetry domain: system operational events.

Structure:
    system/         System operational logs (system.jsonl)
                    - Backend selection, keychain probe, trust changes
"""

__all__: list[str] = []
