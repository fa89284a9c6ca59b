"""
Value generators and the generate-once store.

The database login suffix and password are generated locally rather than
by a cloud API. Regenerating either one would force the engine to replace
the database server, so a value is generated exactly once per deployment
and persisted in the GeneratedValueStore next to the engine state. Later
evaluations of the declaration read the stored value back.

A stored value is regenerated only when:
    - it is reset explicitly (GeneratedValueStore.reset / CLI reset-generated)
    - the resource's generator spec changes (length, prefix, ...); this is
      logged as a warning because the server will be replaced

Usage:
    store = GeneratedValueStore(Path(".deploy/generated_values.json"))
    login = store.resolve(db_login_declaration)  # "directusmole"
"""

import json
import logging
import secrets
import string
from pathlib import Path
from typing import Any, Dict, Optional

from .core.exceptions import ConfigurationError
from .core.graph import ResourceDeclaration
from .core.registry import GeneratorRegistry
from .util import write_private_json

logger = logging.getLogger(__name__)

RANDOM_PET_TYPE = "random:RandomPet"
RANDOM_PASSWORD_TYPE = "random:RandomPassword"

PET_ADVERBS = [
    "actually", "barely", "briefly", "deeply", "early", "easily", "evenly",
    "firmly", "freely", "gently", "happily", "highly", "kindly", "largely",
    "mainly", "mostly", "neatly", "nicely", "openly", "partly", "quickly",
    "quietly", "rarely", "really", "simply", "slowly", "surely", "truly",
    "vastly", "wholly",
]

PET_ADJECTIVES = [
    "able", "brave", "calm", "clever", "cosmic", "crisp", "eager", "fancy",
    "fast", "fine", "gentle", "golden", "grand", "happy", "honest", "humble",
    "keen", "lively", "loyal", "lucky", "merry", "modest", "noble", "proud",
    "quick", "rapid", "sharp", "steady", "super", "witty",
]

PET_NAMES = [
    "badger", "beetle", "bison", "bobcat", "camel", "cobra", "condor",
    "crane", "dingo", "dove", "eagle", "falcon", "ferret", "gecko", "heron",
    "ibex", "jackal", "koala", "lemur", "lynx", "marmot", "mole", "moose",
    "newt", "ocelot", "otter", "panda", "puffin", "quail", "raven", "salmon",
    "seal", "shrew", "stork", "tapir", "toucan", "vole", "walrus", "wombat",
    "zebra",
]


class RandomPetGenerator:
    """
    Human-readable random names.

    Spec keys:
        length: Number of words (default 2). One word is a name, two words
            adjective + name, more words prepend adverbs.
        prefix: Optional string placed before the words
        separator: Joins prefix and words (default "-")
    """

    resource_type = RANDOM_PET_TYPE
    output_attribute = "id"
    secret = False

    def generate(self, spec: Dict[str, Any]) -> str:
        length = spec.get("length", 2)
        separator = spec.get("separator", "-")
        prefix = spec.get("prefix")

        if not isinstance(length, int) or length < 1:
            raise ConfigurationError(f"RandomPet length must be a positive integer, got {length!r}")

        words = [secrets.choice(PET_NAMES)]
        if length >= 2:
            words.insert(0, secrets.choice(PET_ADJECTIVES))
        for _ in range(length - 2):
            words.insert(0, secrets.choice(PET_ADVERBS))

        if prefix:
            words.insert(0, prefix)
        return separator.join(words)


class RandomPasswordGenerator:
    """
    Random passwords drawn with the secrets module.

    Spec keys:
        length: Password length (required)
        upper / lower / numeric / special: Character classes (default True)
        overrideSpecial: Special characters to use instead of string.punctuation

    Every enabled character class appears at least once when the length
    allows it.
    """

    resource_type = RANDOM_PASSWORD_TYPE
    output_attribute = "result"
    secret = True

    def generate(self, spec: Dict[str, Any]) -> str:
        length = spec.get("length")
        if not isinstance(length, int) or length < 1:
            raise ConfigurationError(f"RandomPassword length must be a positive integer, got {length!r}")

        classes = []
        if spec.get("upper", True):
            classes.append(string.ascii_uppercase)
        if spec.get("lower", True):
            classes.append(string.ascii_lowercase)
        if spec.get("numeric", True):
            classes.append(string.digits)
        if spec.get("special", True):
            classes.append(spec.get("overrideSpecial") or string.punctuation)

        if not classes:
            raise ConfigurationError("RandomPassword needs at least one character class")

        alphabet = "".join(classes)
        while True:
            password = "".join(secrets.choice(alphabet) for _ in range(length))
            if length < len(classes) or all(
                any(c in charset for c in password) for charset in classes
            ):
                return password


GeneratorRegistry.register(RANDOM_PET_TYPE, RandomPetGenerator)
GeneratorRegistry.register(RANDOM_PASSWORD_TYPE, RandomPasswordGenerator)


class GeneratedValueStore:
    """
    Persists generated values so they are produced once per deployment.

    File format (JSON object keyed by logical resource name):
        {
          "db-login": {"type": "random:RandomPet", "spec": {...}, "value": "directusmole"}
        }

    Attributes:
        path: JSON file backing the store, or None for an in-memory store
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self._entries: Dict[str, dict] = self._load()

    def _load(self) -> Dict[str, dict]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                entries = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in generated values store: {e}",
                config_file=str(self.path)
            )
        if not isinstance(entries, dict):
            raise ConfigurationError(
                "Generated values store must contain a JSON object",
                config_file=str(self.path)
            )
        return entries

    def _save(self) -> None:
        if self.path is None:
            return
        # Holds the database password
        write_private_json(self.path, self._entries)

    def resolve(self, resource: ResourceDeclaration) -> Any:
        """
        Return the value for a generated resource, generating it if needed.

        Args:
            resource: A declaration whose type has a registered generator

        Returns:
            The stored (or freshly generated) plain value

        Raises:
            GeneratorNotFoundError: If the resource type has no generator
        """
        entry = self._entries.get(resource.name)
        if entry is not None:
            if entry.get("type") == resource.type and entry.get("spec") == resource.properties:
                return entry["value"]
            logger.warning(
                f"Generator spec for '{resource.name}' changed; generating a new value. "
                f"Resources using it will be replaced on the next apply."
            )

        generator = GeneratorRegistry.get(resource.type)
        value = generator.generate(resource.properties)
        self._entries[resource.name] = {
            "type": resource.type,
            "spec": resource.properties,
            "value": value,
        }
        self._save()
        logger.info(f"Generated new value for '{resource.name}'")
        return value

    def get(self, name: str) -> Optional[Any]:
        """Stored value for a logical name, or None."""
        entry = self._entries.get(name)
        return entry["value"] if entry else None

    def names(self) -> list[str]:
        return sorted(self._entries)

    def reset(self, name: Optional[str] = None) -> list[str]:
        """
        Forget stored values so they are regenerated on the next evaluation.

        Args:
            name: Logical name to reset; all values when None

        Returns:
            Logical names that were removed

        Raises:
            KeyError: If name is given but not stored
        """
        if name is None:
            removed = self.names()
            self._entries.clear()
        else:
            if name not in self._entries:
                raise KeyError(f"No generated value stored for '{name}'")
            del self._entries[name]
            removed = [name]

        self._save()
        for removed_name in removed:
            logger.warning(f"Reset generated value for '{removed_name}'")
        return removed
