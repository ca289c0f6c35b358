"""
Assistant persona scenarios.

Each scenario file defines:
- name: Scenario identifier
- prompt: Instructions sent to the realtime model in session.update
"""
