"""Storefront backend: orders with stock control, restock alerts and scheduled stock analysis."""
from dotenv import load_dotenv

# .env values become process environment before Settings is first read
load_dotenv()
