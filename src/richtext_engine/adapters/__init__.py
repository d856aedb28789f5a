"""Host adapters driving an EditorSession."""
