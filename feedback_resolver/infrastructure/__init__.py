"""
Infrastructure
==============

Clients for the external systems every module relies on:
- database: async SQLAlchemy engine and sessions
- llm: classification and embedding inference clients
- vectorstore: Milvus similarity index
"""
