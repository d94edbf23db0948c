"""
Stable Kernel Layer

Identity Core: credential hashing, session tokens, refresh tokens and the
persistence models behind them. HTTP handling lives in the calling layer.
"""
