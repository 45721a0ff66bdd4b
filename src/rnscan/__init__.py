"""rnscan: static security scanner for React Native and Expo projects."""

__version__ = "0.1.0"
