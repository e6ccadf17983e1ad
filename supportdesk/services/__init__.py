"""
Services package for SupportDesk.

- chat_service.py: Message handling flow (guardrails, model, persistence)
- chat_model.py: Chat-model client protocol and Gemini implementation
- chat_repository.py: SQLAlchemy-backed message storage
"""
