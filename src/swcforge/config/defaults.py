"""
swcforge.config.defaults - Default configuration values.
"""

from typing import Any, Dict

CONFIG_FILE_NAME = ".swcforge.toml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "project": {
        "name": "",
        "autosar_version": "4.3.1",
    },
    "extraction": {
        "min_line_length": 10,
        "min_token_length": 3,
        "stopwords": [
            "the", "this", "that", "these", "those", "its", "which", "who",
            "and", "also", "then", "not", "all", "any", "each", "with", "from",
            "system", "software", "component", "module", "function",
            "shall", "must", "will", "value", "data", "signal", "type",
            "there", "they", "when", "where", "while",
        ],
        "excluded_interface_tokens": ["sender", "receiver"],
        "default_interface": "DefaultInterface",
    },
    "synthesis": {
        "default_ecu_name": "SystemECU",
        "default_period_ms": 100,
        "signal_data_type": "uint16",
        "fallback_data_type": "uint32",
    },
    "logging": {
        "level": "WARNING",
    },
}
