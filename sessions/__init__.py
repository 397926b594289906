"""
Sessions Package

Components that run one fortune-telling session:
- ConversationStateMachine: intro, player input, chat retry loop, playback
- DialogueView: what a frontend must provide to display the session

Usage:
    from sessions.conversation import ConversationStateMachine
    from sessions.view import DialogueView
"""

__all__ = [
    "ConversationStateMachine",
    "DialogueView",
]
