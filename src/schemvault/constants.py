# src/schemvault/constants.py
"""
File-layout constants shared by the codec, the scanner and the backup policy.
"""

# Extension of a sheet's primary (explicitly saved) file.
SHEET_EXTENSION = ".dgm"

# Extension of the automatically saved copy that lives next to the primary file.
AUTOSAVE_EXTENSION = ".dgmauto"

# Extension of the (empty) marker file identifying a project folder.
PROJECT_EXTENSION = ".dprj"

# Name of the sibling directory holding backup revisions.
BACKUP_DIR_NAME = "backup"

# Name given to the sheet created for a new or emptied project.
DEFAULT_SHEET_NAME = "main"

# Positional displacement below which two canvases are still considered the same.
# Deliberately coarse: it absorbs any drag of components or wire vertices.
DEFAULT_LAYOUT_TOLERANCE = 10000.0
