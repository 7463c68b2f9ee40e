"""
Serverless handlers for the meeting bot workflow.

This package contains the modular components used by the HTTP entrypoints
in :mod:`meetingbot.main` to start a transcription bot in a meeting, pull
the finished transcript, summarise it with a generative model and index the
summary as an embedding vector in the meetings table.
"""
