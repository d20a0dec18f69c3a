"""
Format constants for Dolphin TAS movie (.dtm) files and their text form.
"""

# Leading signature of every binary movie
DTM_MAGIC = b"DTM\x1a"

# Header record size, magic included
HEADER_SIZE = 256
HEADER_BODY_SIZE = HEADER_SIZE - len(DTM_MAGIC)

# One controller frame: 2 button bytes + 6 analog bytes
FRAME_SIZE = 8

# Text form
TEXT_ENCODING = "utf-8"
JSON_INDENT = 2

# File extensions used to pick a conversion direction
DTM_EXTENSION = ".dtm"
TEXT_EXTENSION = ".txt"
