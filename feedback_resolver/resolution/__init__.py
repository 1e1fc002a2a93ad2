"""
Complaint Resolution Module
============================

Classifies incoming complaints, finds similar past complaints and answers
with a curated solution or a stock reply.

Layers:
- domain: entities, prompt building, response parsing
- application: services, resolution engine, DTOs
- infrastructure: ORM models, repositories, external adapters
- interfaces: HTTP routes, queue consumer
"""
