import pytest
from transaction_rules.parsers.factory import ParserFactory
from transaction_rules.parsers.csv_statement import CsvStatementParser
from transaction_rules.parsers.json_statement import JsonStatementParser

@pytest.mark.unit
class TestParserFactoryConfig:

    def setup_method(self):
        """Clear registry before each test"""
        ParserFactory.reset()

    def test_load_parsers_from_custom_config(self):
        """Test loading parsers with injected config (no file I/O)"""

        # Arrange
        test_config = {
            "parsers": [
                {
                    "format": "csv",
                    "class": "transaction_rules.parsers.csv_statement.CsvStatementParser",
                    "extensions": [".csv", ".txt"]
                }
            ]
        }

        # Act
        ParserFactory.load_parsers_from_config(config=test_config)

        # Assert
        assert "csv" in ParserFactory._registry
        assert ParserFactory._registry["csv"] == CsvStatementParser
        assert ParserFactory._extensions[".txt"] == "csv"
        assert ParserFactory._locked is True

    def test_load_packaged_parsers(self):
        ParserFactory.load_parsers_from_config()

        assert ParserFactory.get_available_formats() == ["csv", "json"]

    def test_load_parsers_with_invalid_module_path(self):
        """Test error handling for invalid parser class"""
        test_config = {
            "parsers": [
                {
                    "format": "fake",
                    "class": "nonexistent.module.FakeParser"
                }
            ]
        }

        with pytest.raises(ModuleNotFoundError):
            ParserFactory.load_parsers_from_config(config=test_config)

    def test_load_parsers_with_malformed_config(self):
        """Test handling of malformed config"""
        bad_config = {
            "parsers": [
                {
                    "format": "csv"
                    # Missing 'class' key!
                }
            ]
        }

        with pytest.raises(KeyError):
            ParserFactory.load_parsers_from_config(config=bad_config)

@pytest.mark.unit
class TestParserFactoryRegistry:

    def setup_method(self):
        """Clear registry before each test"""
        ParserFactory.reset()

    def test_successful_registry(self):
        ParserFactory.register('csv', CsvStatementParser)

        assert "csv" in ParserFactory._registry
        assert ParserFactory._registry["csv"] == CsvStatementParser
        assert ParserFactory._extensions == {".csv": "csv"}
        assert ParserFactory._locked is False

    def test_failure_register_after_lock(self):
        ParserFactory.lock_registry()

        with pytest.raises(RuntimeError):
            ParserFactory.register('csv', CsvStatementParser)

    def test_failure_register_with_same_parser(self):
        ParserFactory.register('csv', CsvStatementParser)

        with pytest.raises(ValueError):
            ParserFactory.register('csv', CsvStatementParser)

    def test_failure_register_with_invalid_parser(self):
        with pytest.raises(TypeError):
            ParserFactory.register('csv', ParserFactory) # Any class thats not a TransactionParser

@pytest.mark.unit
class TestParserFactoryCreateParser:

    def setup_method(self):
        """Clear registry before each test"""
        ParserFactory.reset()

    def test_succesful_parser_creation(self):
        ParserFactory.register('csv', CsvStatementParser)
        parser = ParserFactory.create_parser('csv', default_account_id="chequing")

        assert parser.__class__ is CsvStatementParser
        assert parser.default_account_id == "chequing"

    def test_failure_on_unregistered_parser(self):
        with pytest.raises(ValueError):
            ParserFactory.create_parser('unregistered-parser')

    def test_parser_for_extension(self):
        ParserFactory.register('csv', CsvStatementParser)
        ParserFactory.register('json', JsonStatementParser)

        assert isinstance(ParserFactory.create_parser_for("march.CSV"), CsvStatementParser)
        assert isinstance(ParserFactory.create_parser_for("export.json"), JsonStatementParser)

    def test_parser_for_unknown_extension(self):
        ParserFactory.register('csv', CsvStatementParser)

        with pytest.raises(ValueError, match="Supported extensions: .csv"):
            ParserFactory.create_parser_for("statement.pdf")
