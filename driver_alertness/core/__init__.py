"""Classification core: geometry, mouth dynamics, eye/head checks and the state engine."""
