# velura/core/scaffold.py
"""
Scaffold completion for generated projects.

The preview runs a Vite + React + TypeScript project with Tailwind loaded from
the CDN. Whatever the model returns, the final file set must boot there, so
missing entry points and configs are filled in from fixed templates. Files the
model supplied are never touched.
"""
import logging
from typing import Dict

logger = logging.getLogger(__name__)

HTML_ENTRY = "index.html"
SCRIPT_ENTRY = "src/main.tsx"
APP_COMPONENT = "src/App.tsx"
BUNDLER_CONFIG = "vite.config.ts"
TYPE_CONFIG = "tsconfig.json"
STYLE_CONFIG = "tailwind.config.js"
POSTCSS_CONFIG = "postcss.config.js"

# the stylesheet the CDN approach makes redundant
RESERVED_STYLESHEET = "src/index.css"

BOOTABLE_FILES = (HTML_ENTRY, SCRIPT_ENTRY, APP_COMPONENT)

ESSENTIAL_FILES: Dict[str, str] = {
    HTML_ENTRY: """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>Landing Page</title>
    <script src="https://cdn.tailwindcss.com"></script>
  </head>
  <body>
    <div id="root"></div>
    <script type="module" src="/src/main.tsx"></script>
  </body>
</html>""",

    SCRIPT_ENTRY: """import React from 'react'
import ReactDOM from 'react-dom/client'
import App from './App'

ReactDOM.createRoot(document.getElementById('root')!).render(
  <React.StrictMode>
    <App />
  </React.StrictMode>,
)""",

    BUNDLER_CONFIG: """import { defineConfig } from 'vite'
import react from '@vitejs/plugin-react'

export default defineConfig({
  plugins: [react()],
})""",

    TYPE_CONFIG: """{
  "compilerOptions": {
    "target": "ES2020",
    "useDefineForClassFields": true,
    "lib": ["ES2020", "DOM", "DOM.Iterable"],
    "module": "ESNext",
    "skipLibCheck": true,
    "moduleResolution": "bundler",
    "allowImportingTsExtensions": true,
    "resolveJsonModule": true,
    "isolatedModules": true,
    "noEmit": true,
    "jsx": "react-jsx",
    "strict": true,
    "noUnusedLocals": true,
    "noUnusedParameters": true,
    "noFallthroughCasesInSwitch": true
  },
  "include": ["src"],
  "references": [{ "path": "./tsconfig.node.json" }]
}""",

    STYLE_CONFIG: """/** @type {import('tailwindcss').Config} */
export default {
  content: [
    "./index.html",
    "./src/**/*.{js,ts,jsx,tsx}",
  ],
  theme: {
    extend: {},
  },
  plugins: [],
}""",

    POSTCSS_CONFIG: """export default {
  plugins: {
    tailwindcss: {},
    autoprefixer: {},
  },
}""",
}

APP_PLACEHOLDER = """export default function App() {
  return (
    <div className="min-h-screen flex items-center justify-center bg-gradient-to-br from-purple-900 via-blue-900 to-indigo-900">
      <div className="text-center text-white">
        <h1 className="text-6xl font-bold mb-4">Welcome</h1>
        <p className="text-xl">Your app is running!</p>
      </div>
    </div>
  );
}"""


def ensure_essentials(files: Dict[str, str]) -> Dict[str, str]:
    """
    Return a copy of files with every missing essential file added from its template,
    plus a placeholder root component when src/App.tsx is absent. Never raises.
    """
    result = dict(files or {})
    added = []
    for filename, template in ESSENTIAL_FILES.items():
        if filename not in result:
            result[filename] = template
            added.append(filename)

    if APP_COMPONENT not in result:
        result[APP_COMPONENT] = APP_PLACEHOLDER
        added.append(APP_COMPONENT)

    if added:
        logger.info("scaffolded missing files: %s", ", ".join(added))
    return result


def is_bootable(files: Dict[str, str]) -> bool:
    return all(name in files for name in BOOTABLE_FILES)
