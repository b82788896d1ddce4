import importlib
from pathlib import Path
from typing import Any, Dict, Optional, Type
from transaction_rules.parsers.base import TransactionParser
from transaction_rules.config.settings import ConfigLoader

class ParserFactory:
    """
    Factory for creating statement parsers.

    Uses a registry pattern to map file format identifiers to parser classes.
    """

    _locked = False
    _registry: Dict[str, Type[TransactionParser]] = {}
    _extensions: Dict[str, str] = {}

    @classmethod
    def register(
        cls,
        format_name: str,
        parser_class: Type[TransactionParser],
        extensions: Optional[list[str]] = None,
    ) -> None:
        """
        Register a parser for a file format

        Args:
            format_name: Unique identifier for the format (e.g, 'csv', 'json')
            parser_class: The parser class
            extensions: File extensions handled by this parser. Defaults
                to the parser class's own `extensions`.

        Raises:
            ValueError: If parser is already registered
            TypeError: If parser_class doesn't inherit from TransactionParser
            RuntimeError: If the parser registry is locked

        Example:
            ParserFactory.register('csv', CsvStatementParser)
        """
        if cls._locked:
            raise RuntimeError("Registry is locked, cannot add more parsers")

        if format_name in cls._registry:
            raise ValueError(f"Parser for '{format_name}' is already registered")

        if not isinstance(parser_class, type) or not issubclass(parser_class, TransactionParser):
            raise TypeError(f"{parser_class} must inherit from TransactionParser")

        cls._registry[format_name] = parser_class
        for ext in extensions or parser_class.extensions:
            cls._extensions[ext.lower()] = format_name

    @classmethod
    def lock_registry(cls):
        """Prevent further registration (call after app initialization)"""
        cls._locked = True

    @classmethod
    def reset(cls):
        """Clear the registry"""
        cls._registry = {}
        cls._extensions = {}
        cls._locked = False

    @classmethod
    def create_parser(cls, format_name: str, **kwargs) -> TransactionParser:
        """
        Create a parser instance for the specified format.

        Args:
            format_name: Format identifier (e.g., 'csv', 'json')
            **kwargs: Passed to the parser constructor

        Raises:
            ValueError: If no parser registered for this format
        """
        if format_name not in cls._registry:
            available = ', '.join(cls._registry.keys())
            raise ValueError(
                f"No parser registered for '{format_name}'. "
                f"Available parsers: {available}"
            )

        return cls._registry[format_name](**kwargs)

    @classmethod
    def create_parser_for(cls, filepath: Path | str, **kwargs) -> TransactionParser:
        """
        Create a parser based on a file's extension.

        Raises:
            ValueError: If no parser handles the extension
        """
        suffix = Path(filepath).suffix.lower()
        if suffix not in cls._extensions:
            available = ', '.join(sorted(cls._extensions.keys()))
            raise ValueError(
                f"No parser registered for '{suffix}' files. "
                f"Supported extensions: {available}"
            )
        return cls.create_parser(cls._extensions[suffix], **kwargs)

    @classmethod
    def get_available_formats(cls) -> list[str]:
        """Return list of all registered format identifiers"""
        return list(cls._registry.keys())

    @classmethod
    def load_parsers_from_config(
        cls,
        config: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Load and register parsers from configuration

        Args:
            config: Optional config dict. If None, loads from ConfigLoader.
                Useful for testing with custom configs.

            Example (production):
                ParserFactory.load_parsers_from_config()

            Example (testing):
                test_config = {"parsers": [...]}
                ParserFactory.load_parsers_from_config(config=test_config)
        """
        if config is None:
            config = ConfigLoader.load_parsers_config()

        for parser_config in config['parsers']:
            module_path, class_name = str(parser_config['class']).rsplit('.', 1)
            module = importlib.import_module(module_path)
            parser_class = getattr(module, class_name)

            cls.register(
                parser_config['format'],
                parser_class,
                parser_config.get('extensions'),
            )

        cls.lock_registry()
