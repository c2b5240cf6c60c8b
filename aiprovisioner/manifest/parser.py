"""YAML manifest parser."""
import yaml
from pydantic import ValidationError as SchemaError

from .schema import Manifest
from ..errors import ValidationError

class ManifestParser:
    """Parser for YAML AI project manifests."""
    
    @staticmethod
    def load(file_path: str) -> Manifest:
        """Load and validate a YAML manifest file.
        
        Args:
            file_path: Path to the YAML manifest file.
            
        Returns:
            Manifest: Validated manifest object.
            
        Raises:
            FileNotFoundError: If the manifest file doesn't exist.
            ValidationError: If the manifest is invalid or malformed.
        """
        with open(file_path, 'r') as f:
            return ManifestParser.loads(f.read())

    @staticmethod
    def loads(text: str) -> Manifest:
        """Validate a manifest from YAML text."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValidationError(f"Malformed manifest YAML: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError("Manifest must be a mapping")
        try:
            return Manifest.model_validate(data)
        except SchemaError as e:
            raise ValidationError(f"Invalid manifest: {e}") from e
