"""Database schema for the chunk store.

``TABLES`` is safe to run against any existing database. Column additions
for older databases live in ``docrecall.storage.migrations`` and run before
``INDEXES``, which references the newer columns.
"""

SCHEMA_VERSION = 2

TABLES = """
-- Chunks: one row per retrievable unit, plus its cached activation
CREATE TABLE IF NOT EXISTS chunks (
    chunk_id TEXT PRIMARY KEY,
    file_path TEXT NOT NULL,
    page_start INTEGER DEFAULT 0,
    page_end INTEGER DEFAULT 0,
    element TEXT DEFAULT 'txt',
    name TEXT DEFAULT '',
    content TEXT DEFAULT '',
    parent_chunk_id TEXT,
    section_path TEXT DEFAULT '[]',  -- JSON array
    section_level INTEGER DEFAULT 0,
    type TEXT DEFAULT 'kb',
    metadata TEXT DEFAULT '{}',      -- JSON object
    role TEXT DEFAULT 'public',
    activation REAL DEFAULT 0.0,
    access_count INTEGER DEFAULT 0,
    last_accessed TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Access history: append-only log behind the activation cache
CREATE TABLE IF NOT EXISTS access_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chunk_id TEXT NOT NULL,
    accessed_at TEXT NOT NULL,
    query TEXT,
    FOREIGN KEY (chunk_id) REFERENCES chunks(chunk_id) ON DELETE CASCADE
);

-- Store metadata: schema version and creation time
CREATE TABLE IF NOT EXISTS store_meta (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""

FULLTEXT = """
CREATE VIRTUAL TABLE IF NOT EXISTS chunks_fts USING fts5(
    chunk_id UNINDEXED,
    name,
    content,
    section_path,
    content=chunks,
    content_rowid=rowid,
    tokenize='porter unicode61'
);
"""

INDEXES = """
CREATE INDEX IF NOT EXISTS idx_chunks_file ON chunks(file_path);
CREATE INDEX IF NOT EXISTS idx_chunks_element ON chunks(element);
CREATE INDEX IF NOT EXISTS idx_chunks_type_v2 ON chunks(type);
CREATE INDEX IF NOT EXISTS idx_chunks_role ON chunks(role);
CREATE INDEX IF NOT EXISTS idx_chunks_activation ON chunks(activation DESC);
CREATE INDEX IF NOT EXISTS idx_access_chunk ON access_history(chunk_id);

-- Keep the full-text index in step with chunk writes
CREATE TRIGGER IF NOT EXISTS chunks_ai AFTER INSERT ON chunks BEGIN
    INSERT INTO chunks_fts(rowid, chunk_id, name, content, section_path)
    VALUES (new.rowid, new.chunk_id, new.name, new.content, new.section_path);
END;

CREATE TRIGGER IF NOT EXISTS chunks_ad AFTER DELETE ON chunks BEGIN
    INSERT INTO chunks_fts(chunks_fts, rowid, chunk_id, name, content, section_path)
    VALUES ('delete', old.rowid, old.chunk_id, old.name, old.content, old.section_path);
END;

CREATE TRIGGER IF NOT EXISTS chunks_au AFTER UPDATE OF chunk_id, name, content, section_path ON chunks BEGIN
    INSERT INTO chunks_fts(chunks_fts, rowid, chunk_id, name, content, section_path)
    VALUES ('delete', old.rowid, old.chunk_id, old.name, old.content, old.section_path);
    INSERT INTO chunks_fts(rowid, chunk_id, name, content, section_path)
    VALUES (new.rowid, new.chunk_id, new.name, new.content, new.section_path);
END;
"""
