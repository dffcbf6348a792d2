"""Fixtures in the Mollusk protobuf layout, with compute budget and sysvars."""