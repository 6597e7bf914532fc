"""
Arbitrator Service - Match arbitration for tic-tac-toe bots

Responsibilities:
- Run matches between bot services (and human seats) over HTTP
- Standard and infinity rule variants on 3x3 and 5x5 boards
- Single-elimination tournaments for 2-12 players
- Live event stream for connected viewers
- Match statistics and recent-result replays
"""
