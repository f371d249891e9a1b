"""投票ページ."""
