"""Social graph API: accounts, profiles and follows."""
