"""Actionable error catalog for tyson."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "missing_resource_group": {
        "what": "A resource group is required if random selection is disabled.",
        "next": "Pass `--resource-group` together with `--vm-name`, or use `--random`.",
    },
    "missing_vm_name": {
        "what": "A virtual machine name is required if random selection is disabled.",
        "next": "Pass `--vm-name`, or use `--random` to pick a target.",
    },
    "invalid_regex": {
        "what": "Invalid selection pattern '{pattern}': {detail}",
        "next": "Provide a valid Python regular expression with `--regex`.",
    },
    "credentials_not_found": {
        "what": "Credentials file not found: {path}",
        "next": "Create the file or point `--credentials-file` at a service principal JSON file.",
    },
    "no_match": {
        "what": "No virtual machine found matching regex '{pattern}' in {scope}.",
        "next": "Widen `--regex` or drop `--resource-group` to search every group.",
    },
    "storage_unreachable": {
        "what": "Storage account '{account}' could not be accessed. The virtual machine was not deleted.",
        "next": "Check that the service principal may list keys for the storage account.",
    },
    "orphaned_blob": {
        "what": "Virtual machine {name} was deleted but its disk blob was not: {url}",
        "next": "Delete the orphaned blob manually to stop storage charges.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
