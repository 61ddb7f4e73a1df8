"""
Daily Letter Bot

A once-a-day automated email bot that asks an LLM (OpenAI Chat Completions)
to write a fresh letter, using the last few letters as context, and sends it via SMTP.
"""

__version__ = "1.0.0"
