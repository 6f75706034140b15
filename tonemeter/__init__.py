"""ToneMeter -- tone moderation for co-parenting family messaging."""

__version__ = "0.1.0"
