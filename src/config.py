"""
Environment configuration.

Settings come from the process environment, with a local ``.env`` file
(or one in the project root) loaded through python-dotenv.
"""

import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables - look in parent directory if not found
load_dotenv()
if not os.getenv('AZURE_CLIENT_ID'):
    parent_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    env_path = os.path.join(parent_dir, '.env')
    load_dotenv(env_path)


DEFAULT_ONEDRIVE_FILE_PATH = "/TJM/Real Estate/TJM_RENT_v2.xlsx"
DEFAULT_CONTRACTS_SHEET = "Contracts"
DEFAULT_GH_BASE_BRANCH = "main"


def get_setting(name: str, default: Optional[str] = None) -> Optional[str]:
    """
    Read a setting from the environment, treating blank values as unset.

    Args:
        name (str): Environment variable name
        default (str, optional): Value returned when the variable is unset

    Returns:
        str: The stripped value, or the default
    """
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def contracts_sheet_name() -> str:
    return get_setting('CONTRACTS_SHEET', DEFAULT_CONTRACTS_SHEET)
