"""League night domain services: scoring, ranking, payouts, putt-offs and cards.

Each module keeps a pure core that works on plain values and, where rows
have to be read or written, a thin service layer on top of the SQLAlchemy
models. HTTP routes and socket handlers import from here so transport
concerns stay out of the league rules.
"""
