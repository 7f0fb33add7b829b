"""
Schemas module - stored records and API contracts.

Difference between the two halves of schemas.py:
- Records: what lives in MongoDB (Profile, MentorRequest, ChatRoom, Message, ChatReport)
- Schemas: API contract (what client sends/receives)
"""
