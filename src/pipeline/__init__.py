"""
Pipeline Module for the Spam Embedding Pipeline

Contains the CLI-level commands: generate_embeddings, train_model, predict.
"""

__all__ = []
