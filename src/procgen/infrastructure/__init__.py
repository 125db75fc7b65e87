"""World infrastructure: roads between settlements and the structures along them."""
