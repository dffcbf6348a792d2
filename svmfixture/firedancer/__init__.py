"""Fixtures in the Firedancer protobuf layout, with slot and epoch contexts and metadata."""