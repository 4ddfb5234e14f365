"""
Timer subsystem.

Components:
- timer_models.py: modes, phases, persisted snapshot, MM:SS helpers
- timer_machine.py: countdown state machine with a single tick task
- reconcile.py: rebuild the timer from its snapshot after a restart
- alerts.py: notifier and sound cue used on expiration
"""
