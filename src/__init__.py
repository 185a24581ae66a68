"""
Spam Embedding Pipeline

Turns labeled spam/ham texts into embeddings from a remote embedding service,
persists them incrementally, and assembles train/test datasets for a KNN
regression model that scores texts for spam/fraud likelihood.
"""

__version__ = "0.1.0"
