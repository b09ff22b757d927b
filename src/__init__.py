"""
LOBSTR x402 Facilitator
"""
