from agent_gateway.memory.message_log import MessageLog
from agent_gateway.memory.models import Message, SessionRecord
from agent_gateway.memory.session_registry import SessionRegistry, new_session_id, now_ms, valid_session_id
from agent_gateway.memory.store import MemoryStore

__all__ = [
    "MemoryStore",
    "Message",
    "MessageLog",
    "SessionRecord",
    "SessionRegistry",
    "new_session_id",
    "now_ms",
    "valid_session_id",
]
