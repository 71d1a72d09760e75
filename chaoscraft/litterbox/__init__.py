"""The Litterbox - explanations, reports and exported mock configuration."""
