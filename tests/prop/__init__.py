"""
Property-based tests for the instruction codec.

Strategies generate canonical assembly for every operation and raw words
for every opcode; the tests check both round-trip directions.
"""
