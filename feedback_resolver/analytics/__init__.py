"""
Complaint Analytics Module
===========================

Read-only aggregate statistics over processed complaints.
"""
