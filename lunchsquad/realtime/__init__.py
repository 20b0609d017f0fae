"""
Attendance change notifications.

Viewers of a day subscribe and re-resolve the recommendation whenever
someone's attendance for that day changes.
"""
