"""Domain entities and services.

- entities: tagged domain types stored in the local store
- progress_tracker: reading state per (user, material)
- accounts, library, community: local-first app services
- study_assistant, exam_center: AI features over the LLM client
"""
