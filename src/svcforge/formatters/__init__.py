from svcforge.formatters.black_adapter import BlackFormatter, PassthroughFormatter, formatter_for

__all__ = ["BlackFormatter", "PassthroughFormatter", "formatter_for"]
