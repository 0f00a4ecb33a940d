# Shared helpers for the campus marketplace backend
