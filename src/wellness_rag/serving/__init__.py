"""
Serving — HTTP access to the knowledge base for the chat assistant.
"""
