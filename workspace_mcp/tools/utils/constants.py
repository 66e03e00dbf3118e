# Constants for the file tree scanner and workspace policy

# Content ceiling for the editor cache
MAX_CONTENT_BYTES = 50_000
OVERSIZED_CONTENT_PLACEHOLDER = "// File too large to load in editor"

# Scan depths
OPEN_FOLDER_DEPTH = 4
READ_DIRECTORY_DEPTH = 2

# Synthetic root used when no folder is open
VIRTUAL_ROOT_ID = "root"
VIRTUAL_ROOT_NAME = "/"

# Base name for folders created without an explicit name
NEW_FOLDER_BASE_NAME = "New Folder"

# Directories excluded from tree scans
DEFAULT_IGNORE_DIRECTORIES = {
    "node_modules", "__pycache__", "env", "venv", "target",
    "build", "dist", "out", "bundle", "vendor", "deps", "Pods",
    ".git", ".svn", ".hg", ".next", ".env", ".cache", ".DS_Store",
    # Windows profile noise when a home directory is opened
    "AppData", "Local Settings", "Application Data", "My Documents",
    "Templates", "Start Menu",
}

# Files written by create_project
PROJECT_TEMPLATE_FILES = {
    "README.md": "# {name}\n\nWelcome to your new project!\n",
    "index.html": (
        "<!DOCTYPE html>\n<html lang=\"en\">\n<head>\n    <meta charset=\"UTF-8\">\n"
        "    <title>{name}</title>\n    <link rel=\"stylesheet\" href=\"styles.css\">\n"
        "</head>\n<body>\n    <h1>Hello, {name}!</h1>\n"
        "    <script src=\"script.js\"></script>\n</body>\n</html>\n"
    ),
    "styles.css": "/* Styles for {name} */\nbody {{ font-family: sans-serif; background: #1a1a2e; color: #fff; }}\n",
    "script.js": "// JavaScript for {name}\nconsole.log('Hello from {name}!');\n",
}
PROJECT_TEMPLATE_ENTRYPOINT = ("src", "main.js", "// Main entry point\n")
