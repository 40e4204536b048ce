"""
Database Script

This script handles the Supabase connection and the registry queries used by
the governance engine: interventions, governance rules, governance settings
and the profile safe-mode flag, plus the bulk status update.

Read failures raise DataUnavailable so callers can answer calmly instead of
treating missing data as "nothing configured".
"""

import os
from typing import Dict, List, Optional
from supabase import create_client, Client
from dotenv import load_dotenv
import logging

from governance.clock import current_local_time
from governance.errors import DataUnavailable

# Load environment variables from .env file
load_dotenv()

# Setup logging (only if not already configured)
if not logging.getLogger().handlers:
    logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

INTERVENTIONS_TABLE = "interventions_registry"
RULES_TABLE = "intervention_governance_rules"
SETTINGS_TABLE = "intervention_governance_settings"
PROFILES_TABLE = "profiles"


def get_supabase_config() -> Dict[str, str]:
    """
    Get Supabase configuration from environment variables.
    
    Returns:
        Dictionary with 'url' and 'service_role_key'
    
    Raises:
        ValueError: If required environment variables are missing
    """
    url = os.getenv("SUPABASE_URL")
    service_role_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    
    if not url:
        raise ValueError("SUPABASE_URL environment variable is required")
    if not service_role_key:
        raise ValueError("SUPABASE_SERVICE_ROLE_KEY environment variable is required")
    
    return {
        "url": url,
        "service_role_key": service_role_key
    }


def get_supabase_client(service: bool = True) -> Client:
    """
    Create and return a Supabase client instance.
    
    Args:
        service: If True, use service_role_key (for admin operations).
                If False, use anon_key (for user-scoped operations).
    
    Returns:
        Supabase Client instance
    """
    config = get_supabase_config()
    url = config["url"]
    key = config["service_role_key"] if service else os.getenv("SUPABASE_ANON_KEY", "")
    
    if not key:
        raise ValueError("Service role key or anon key is required")
    
    client = create_client(url, key)
    logger.info("Successfully connected to Supabase")
    return client


def fetch_interventions(user_id: str) -> List[Dict]:
    """
    Fetch all non-deleted interventions for a user, oldest first.
    
    Args:
        user_id: UUID of the user
    
    Returns:
        List of interventions_registry rows
    
    Raises:
        DataUnavailable: If the query fails
    """
    try:
        client = get_supabase_client()
        
        response = client.table(INTERVENTIONS_TABLE)\
            .select("id, user_id, intervention_key, status, allow_contextual_trigger, "
                    "user_parameters, why_text, created_at, deleted_at")\
            .eq("user_id", user_id)\
            .is_("deleted_at", "null")\
            .order("created_at", desc=False)\
            .execute()
        
        rows = response.data or []
        logger.info(f"Fetched {len(rows)} interventions for user {user_id}")
        return rows
    except Exception as e:
        logger.error(f"Failed to fetch interventions for user {user_id}: {e}")
        raise DataUnavailable(f"Failed to fetch interventions for user {user_id}") from e


def fetch_active_governance_rules(user_id: str) -> List[Dict]:
    """
    Fetch active governance rules for a user in creation order.
    
    Args:
        user_id: UUID of the user
    
    Returns:
        List of intervention_governance_rules rows with status 'active'
    
    Raises:
        DataUnavailable: If the query fails
    """
    try:
        client = get_supabase_client()
        
        response = client.table(RULES_TABLE)\
            .select("id, user_id, rule_type, rule_parameters, status, created_at")\
            .eq("user_id", user_id)\
            .eq("status", "active")\
            .order("created_at", desc=False)\
            .execute()
        
        rows = response.data or []
        logger.info(f"Fetched {len(rows)} active governance rules for user {user_id}")
        return rows
    except Exception as e:
        logger.error(f"Failed to fetch governance rules for user {user_id}: {e}")
        raise DataUnavailable(f"Failed to fetch governance rules for user {user_id}") from e


def fetch_governance_settings(user_id: str) -> Optional[Dict]:
    """
    Fetch the soft-limit settings row for a user.
    
    Returns:
        Settings row, or None if the user never saved limits
    
    Raises:
        DataUnavailable: If the query fails
    """
    try:
        client = get_supabase_client()
        
        response = client.table(SETTINGS_TABLE)\
            .select("user_id, max_active_interventions, max_reminders")\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        
        if response.data and len(response.data) > 0:
            return response.data[0]
        logger.debug(f"No governance settings found for user {user_id}")
        return None
    except Exception as e:
        logger.error(f"Failed to fetch governance settings for user {user_id}: {e}")
        raise DataUnavailable(f"Failed to fetch governance settings for user {user_id}") from e


def fetch_safe_mode_enabled(user_id: str) -> bool:
    """
    Read the safe-mode flag from the user's profile.
    
    Returns:
        True if safe mode is on. A missing profile reads as off.
    
    Raises:
        DataUnavailable: If the query fails
    """
    try:
        client = get_supabase_client()
        
        response = client.table(PROFILES_TABLE)\
            .select("safe_mode_enabled")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        
        if response.data and len(response.data) > 0:
            return bool(response.data[0].get("safe_mode_enabled", False))
        logger.debug(f"No profile found for user {user_id}, safe mode treated as off")
        return False
    except Exception as e:
        logger.error(f"Failed to fetch safe mode flag for user {user_id}: {e}")
        raise DataUnavailable(f"Failed to fetch safe mode flag for user {user_id}") from e


def update_intervention_statuses(user_id: str, intervention_ids: List[str], status: str) -> int:
    """
    Set the status of several interventions in one update.
    
    Only non-deleted interventions owned by the user are touched. deleted_at is
    never written here.
    
    Args:
        user_id: UUID of the user
        intervention_ids: Interventions to update
        status: 'active' | 'paused' | 'disabled'
    
    Returns:
        Number of rows updated
    
    Raises:
        DataUnavailable: If the update fails
    """
    if not intervention_ids:
        return 0
    
    now_str = current_local_time().isoformat()
    update = {"status": status, "last_modified_at": now_str}
    if status == "paused":
        update["paused_at"] = now_str
    elif status == "active":
        update["enabled_at"] = now_str
    elif status == "disabled":
        update["disabled_at"] = now_str
    
    try:
        client = get_supabase_client()
        
        response = client.table(INTERVENTIONS_TABLE)\
            .update(update)\
            .eq("user_id", user_id)\
            .in_("id", intervention_ids)\
            .is_("deleted_at", "null")\
            .execute()
        
        updated = len(response.data or [])
        logger.info(f"Set status '{status}' on {updated} interventions for user {user_id}")
        return updated
    except Exception as e:
        logger.error(f"Failed to update intervention status for user {user_id}: {e}")
        raise DataUnavailable(f"Failed to update interventions for user {user_id}") from e
