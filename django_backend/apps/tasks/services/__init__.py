"""
Service layer: orchestrates rules, persistence, history, events and notifications.
"""
